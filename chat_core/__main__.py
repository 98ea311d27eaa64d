from chat_core.cli import main

main()
