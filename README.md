# hdfswire

Pure-Python building blocks for the HDFS wire protocols, plus a small
filesystem-style client for namenode metadata operations. It has no
dependencies beyond the standard library.

## Modules

### `hdfswire.client`

`Client(namenode)` offers `os`-like metadata calls: `mkdir`, `mkdir_all`,
`chmod`, `chown`, `chtimes`, `remove`, `remove_all`, `rename`, `stat` and
`stat_fs`.

The `namenode` object must have an `execute(method, request)` method. It
sends the named RPC (for example `"getFileInfo"`, `"mkdirs"`,
`"setPermission"`) with the request fields given as a dict, and returns the
response fields as a mapping, or raises on failure.

- Failures of path operations raise `PathError`, a subclass of `OSError`
  with `op`, `path` and `err` (the underlying error) attributes. A
  `NamenodeError` whose remote exception is a known Hadoop one is turned
  into the matching OS error first: `FileNotFoundError`,
  `FileExistsError`, `PermissionError`, or an `OSError` with `ENOTEMPTY`.
- `stat` returns a `FileInfo` with `name`, `size`, `owner`, `owner_group`,
  `status` (the raw mapping), and the methods `is_dir()`, `mode()`
  (permission bits, with `S_IFDIR` set for directories), `mod_time()` and
  `access_time()` (UTC `datetime`s).
- `mkdir_all` does nothing if the directory already exists. `remove_all`
  does nothing if the path is missing.
- `stat_fs` returns an `FsInfo` with `capacity`, `used`, `remaining`,
  `under_replicated`, `corrupt_blocks`, `missing_blocks`,
  `missing_repl_one_blocks`, `blocks_in_future` and
  `pending_deletion_blocks`. Errors from the namenode are raised as they are.

### `hdfswire.rpc.framing`

- `encode_uvarint` and `decode_uvarint` handle varints.
- `make_prefixed_message` and `read_prefixed_message` handle
  varint-length-prefixed messages.
- `make_rpc_packet` and `read_rpc_packet` handle RPC packets with a 4-byte
  length.
- `write_block_op_request` writes data transfer requests. `BlockOp` holds
  the op codes.
- `new_client_id` returns a random 16-character alphanumeric id.
- `DatanodeId` and `datanode_address` give the `host:port` of a datanode.

Decoding errors raise `MalformedMessageError`. A message here is any object
with `SerializeToString()` and `ParseFromString(data)`.

### `hdfswire.rpc.packet`

`PacketHeader` and `PipelineAck` are the data transfer messages, encoded in
protocol buffer wire format. `Status` holds the datanode status codes.

### `hdfswire.rpc.checksum`

`ChecksumType.CRC32` and `ChecksumType.CRC32C` each have a `compute(data)`
method. `crc32c(data)` is also available on its own.

### `hdfswire.rpc.read_stream`

`BlockReadStream(reader, chunk_size, checksum_type)` reads the packet stream
of one block from a binary reader. `read(size)` returns verified bytes, or
`b""` at the end of the block. A chunk that does not match its checksum
raises `InvalidChecksumError`.

### `hdfswire.rpc.write_stream`

`BlockWriteStream(conn, offset)` buffers data written with `write`. It sends
the data in 64 KiB packets with a CRC32 checksum for each 512-byte chunk. At
an unaligned offset, it first sends a short packet that brings the stream
to a chunk boundary.

Pipeline acks are read from `conn` on a background thread. `flush(force)`
sends the buffered packets. `finish()` sends the end-of-block packet and
waits for every ack. An ack failure raises `AckError`, and an ack out of
order raises `InvalidSeqnoError`.

### `hdfswire.rpc.failover`

`DatanodeFailover(datanodes)` hands out addresses with `next()`. It gives
first the nodes with no recorded failure, then the ones whose last failure
is oldest. `next()` raises `LookupError` once no datanodes are left.

Failures are recorded with `record_failure(err)` and are shared across
instances. `record_datanode_failure` and `clear_datanode_failures` manage
them directly.

### `hdfswire.rpc.errors`

`NamenodeError` holds `method`, `code`, `exception` and `message`, and
`desc` gives the symbolic name of the code.

### `hdfswire.rpc.spn`

`replace_spn_host_wildcard(spn, host)` puts the host in place of `_HOST` in
a Kerberos service principal name.

## Example

```python
from hdfswire.rpc.spn import replace_spn_host_wildcard

replace_spn_host_wildcard("nn/_HOST@EXAMPLE.COM", "nn1.example.com")
# 'nn/nn1.example.com@EXAMPLE.COM'
```

```python
from hdfswire.client import Client, PathError

client = Client(namenode)  # any object with execute(method, request) -> mapping
try:
    client.mkdir_all("/data/incoming", 0o755)
    info = client.stat("/data/incoming")
    print(info.name, info.is_dir(), oct(info.mode()))
except PathError as err:
    print(err.op, err.path, err.err)
```

## What it does not do

- It has no namenode connection of its own. It has no socket handling, RPC
  handshake or Kerberos/SASL negotiation, and it has no protocol buffer
  definitions for namenode requests. You supply the `execute` object.
- It does not dial datanodes and has no failover over connections. The
  block streams work on streams you have already opened.
- It has no file open, read, write or append API, and no directory listing
  or tree walk.
- There is no command-line tool.

## Running the tests

```
pip install -e .[test]
pytest
```