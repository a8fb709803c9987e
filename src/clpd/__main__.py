from clpd.main import main

main()
