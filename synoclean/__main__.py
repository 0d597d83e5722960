from synoclean.cli import main

main()
