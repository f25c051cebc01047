"""Coin values and row types of the indexer's database tables."""