from app.legacy.inventory_reader import LegacyInventoryReader, LegacySourceError, get_legacy_reader
