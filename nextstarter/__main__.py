from nextstarter.cli import main

main()
