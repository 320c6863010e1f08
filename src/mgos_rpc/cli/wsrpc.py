"""
Make an RPC to a Mongoose OS device via websocket.

    $ wsrpc --address device-id --method RPC.Describe name=RPC.Hello
    $ wsrpc 192.168.1.20 RPC.Describe name=RPC.Hello

The address is the device's host[:port]; requests go to `ws://<address>/rpc`.
"""
import logging
from pathlib import Path
from typing import List, Optional

import typer

from mgos_rpc.cli.common import config_section, load_settings, pick, resolve_call, setup_logging
from mgos_rpc.errors import RPCError
from mgos_rpc.node.ws import MAX_RECV_SIZE, RETRY_ATTEMPTS, RETRY_REDIAL, WSNode, process_src

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Make an RPC to a Mongoose OS device via websocket.")


@app.command()
def main(
    params: Optional[List[str]] = typer.Argument(None, help="[ADDRESS] [METHOD] name=value ..."),
    address: str = typer.Option("", "--address", help="The device host[:port]."),
    method: str = typer.Option("", "--method", help="The RPC method to call."),
    print_resp: Optional[bool] = typer.Option(None, "--print-resp/--no-print-resp", help="Print the RPC response (default: on)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds to wait for the reply (default: forever)."),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Call METHOD on the device at ADDRESS and print the response."""
    setup_logging(verbose)
    settings = load_settings(config)
    ws_conf = config_section(settings, "ws")
    rpc_conf = config_section(settings, "rpc")

    address, method, rpc_args = resolve_call(address, method, params)

    ws_timeout = ws_conf.get("timeout")
    # Computed once per process and handed to every node.
    src = process_src()
    try:
        node = WSNode(
            address,
            address,
            src,
            retry_attempts=int(ws_conf.get("retry_attempts", RETRY_ATTEMPTS)),
            retry_redial=bool(ws_conf.get("retry_redial", RETRY_REDIAL)),
            max_recv_size=int(ws_conf.get("max_recv_size", MAX_RECV_SIZE)),
            timeout=float(ws_timeout) if ws_timeout is not None else None,
        )
    except RPCError as e:
        logger.error(f"Failed creating ws node: {e}")
        raise typer.Exit(code=1)

    try:
        resp = node.rpc(method, rpc_args, timeout=pick(timeout, rpc_conf, "timeout", None))
    except RPCError as e:
        logger.error(f"RPC {method!r} failed: {e}")
        raise typer.Exit(code=1)
    finally:
        node.close()

    if pick(print_resp, rpc_conf, "print_resp", True):
        typer.echo(resp)


if __name__ == "__main__":
    app()
