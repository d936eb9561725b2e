from buildstatus.main import main

main()
