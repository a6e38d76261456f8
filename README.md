# modbusrelay

A Modbus-TCP relay that sits between a set of indicator devices and a PLC.

The relay connects to each indicator as a TCP client. It also opens a listening port for each indicator, so the PLC can connect there. Bytes from the indicator go to the PLC client on that port, and bytes from the PLC go back to the indicator. Every frame is written to the log with a short decoding of its Modbus-TCP header. The decoding names the function codes 0x03, 0x06 and 0x10.

## Installation

```
pip install .
```

## Configuration

Connections are read from a CSV file. The first line is a header. Each line after it gives an indicator address, a port and a unit ID:

```
ip,port,unit_id
192.168.0.10,502,1
192.168.0.11,502,2
```

At most 30 connections are read. If the file cannot be read or holds no rows, the relay falls back to one connection: `127.0.0.1:5020`, unit ID 1.

PLC listening ports are assigned automatically. The search starts at 5030, and each connection takes the next free port after the one before it.

## Running

```
modbusrelay
```

By default the relay reads `set.csv` from the current directory. It starts every connection and checks them every five seconds. A connection that has dropped is retried. Stop the relay with Ctrl-C.

Run `modbusrelay --help` for the available options.

## Library use

```python
from modbusrelay.config import load_connections, default_connections
from modbusrelay.modbus import analyze_packet
from modbusrelay.relay import Relay

print(analyze_packet(bytes.fromhex("000100000006010300000002")))
```

`Relay(configs, base_port, log)` takes a list of `ConnectionConfig` entries, the first port to try, and a logging callable. Its `run(check_interval)` coroutine serves until it is cancelled.