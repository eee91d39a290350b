from spatialmedia_cli.cli import main

main()
