from digilinex_cli.mining_cmd import main

main()
