"""Infrastructure adapters: providers, transports, config, logging, webchat."""
