from mpv_handler.cli import main

main()
