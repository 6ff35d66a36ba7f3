from modelprobe.main import main

main()
