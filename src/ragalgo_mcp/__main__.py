from ragalgo_mcp.server import main

main()
