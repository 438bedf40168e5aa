"""Storage backends for the cache: in-memory and filesystem."""