"""I/O adapters: transports, relay server and client, logging and httpx hooks."""
