from status_sync.main import main

main()
