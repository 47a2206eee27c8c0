from objid.cli import cli_main

cli_main()
