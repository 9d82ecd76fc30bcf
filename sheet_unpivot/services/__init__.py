"""Core services: classifier, resolver, join engine and orchestration."""
