"""SQLite validator store and batching of account lists."""