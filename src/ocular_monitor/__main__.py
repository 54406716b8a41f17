from ocular_monitor.cli.app import main

main()
