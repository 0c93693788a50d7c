from shipit.main import main

main()
