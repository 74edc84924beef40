from mrm.cli import main

main()
