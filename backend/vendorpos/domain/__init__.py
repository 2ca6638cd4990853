"""Store-free POS logic: stock snapshots, cart and pricing."""
