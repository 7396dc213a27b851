from acp.cli.app import main

main()
