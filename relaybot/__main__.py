from relaybot.adapters.relay.launcher import main

main()
