"""site_indexer.parser: HTML fact extraction."""
