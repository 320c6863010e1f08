"""
Shared command line plumbing.

Both tools take an address and a method either as flags or as the first
positional arguments, followed by any number of `name=value` RPC arguments.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
import yaml

from mgos_rpc.cli.config_loader import load_config, section


def setup_logging(verbose: bool = False):
    """
    Configures the global logging settings for the entire application.
    This should be called as early as possible during startup.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s [%(levelname)-8s] %(name)s.%(funcName)s: %(message)s'
    )


def load_settings(config: Optional[Path]) -> Dict[str, Any]:
    if config is None:
        return {}
    try:
        return load_config(config)
    except (ValueError, yaml.YAMLError) as e:
        raise typer.BadParameter(str(e), param_hint="--config")


def parse_rpc_args(params: List[str]) -> Dict[str, str]:
    """Turns `name=value` strings into an argument map. Values may contain '='."""
    args: Dict[str, str] = {}
    for param in params:
        name, sep, value = param.partition("=")
        if not sep:
            raise typer.BadParameter(f"RPC arg {param!r} is not formatted as name=value")
        args[name] = value
    return args


def resolve_call(address: str, method: str, params: Optional[List[str]]) -> Tuple[str, str, Dict[str, str]]:
    """
    Fills in the address and method from the positional arguments when the
    flags were not given, and parses the rest as RPC arguments.
    """
    remaining = list(params or [])

    if not address:
        if not remaining:
            raise typer.BadParameter("An address was not provided either via --address or as an arg.")
        address = remaining.pop(0)

    if not method:
        if not remaining:
            raise typer.BadParameter("A method was not provided either via --method or as an arg.")
        method = remaining.pop(0)

    return address, method, parse_rpc_args(remaining)


def pick(flag_value: Any, conf: Dict[str, Any], key: str, default: Any) -> Any:
    """Flag beats config file, config file beats the built-in default."""
    if flag_value is not None:
        return flag_value
    value = conf.get(key)
    return default if value is None else value


def config_section(settings: Dict[str, Any], name: str) -> Dict[str, Any]:
    try:
        return section(settings, name)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--config")
