from pit.cli.app import main

main()
