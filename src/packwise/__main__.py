from packwise.cli import main

main()
