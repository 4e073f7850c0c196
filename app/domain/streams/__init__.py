"""Stream references: classification, enrichment and incremental page assembly."""
