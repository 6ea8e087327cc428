"""Store, gateway, reconciliation, push ingestion and launch orchestration."""
