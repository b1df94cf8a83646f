from plusblocks.cli import main

main()
