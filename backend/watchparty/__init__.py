"""Watch-party backend: rooms, playback sync, watchlists, chat and trivia."""
