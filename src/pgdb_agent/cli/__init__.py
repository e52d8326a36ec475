"""pgdb command line tool."""
