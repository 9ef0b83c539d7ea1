"""fxfer: framed file transfer client

Sends files to a remote receiver over TCP, one connection per file:
- length-prefixed framing (name, size, payload, md5 digest)
- bounded retry with a fixed delay between attempts
- failures reported as values, one file never aborts the batch
"""

__all__ = []
