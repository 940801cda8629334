from asteroid_ls.cli import main

main()
