"""mediastore: a file store with cached image thumbnails on top of S3-compatible object storage"""
