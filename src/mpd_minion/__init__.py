"""mpd-minion: a Music Player Daemon client connector and command line."""
