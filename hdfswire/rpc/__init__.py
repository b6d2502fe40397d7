"""Framing, packet messages, checksums, block streams and datanode failover."""