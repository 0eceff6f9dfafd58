from pollswarm.commands import main

main()
