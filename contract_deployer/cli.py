#!/usr/bin/env python3
"""Command line entry point for deploying contracts and inspecting networks"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import settings
from .core.deployment import DeploymentOrchestrator, DeploymentRequest, DeploymentResult, GasEstimator, ProgressEvent
from .core.errors import RpcUnavailableError, UnknownNetworkError
from .core.networks import DEFAULT_NETWORK_ID, NetworkRegistry
from .core.rpc import JsonRpcClient, RpcHealthProbe
from .core.wallet import JsonRpcWalletSession
from .logging_config import setup_logging


def print_result(result: DeploymentResult) -> None:
    """Pretty print a terminal deployment result"""
    print()
    print("=" * 50)
    if result.success:
        print("✅ Contract deployed")
        print(f"Address:  {result.contract_address}")
        print(f"Tx hash:  {result.transaction_hash}")
        print(f"Block:    {result.block_number}")
        print(f"Gas used: {result.gas_used:,}")
    else:
        error = result.error
        print(f"❌ Deployment failed ({error.kind.value})")
        print(f"Reason:   {error.message}")
        if result.transaction_hash:
            print(f"Tx hash:  {result.transaction_hash}")
        print(f"Next:     {error.suggested_action}")

    print(f"Attempts: {result.attempt_count}")
    if result.explorer_url:
        print(f"Explorer: {result.explorer_url}")


def cli_networks(registry: NetworkRegistry) -> int:
    """List the supported networks"""
    print("🌐 Supported networks")
    print("-" * 50)
    for network in registry.all():
        marker = "*" if network.id == DEFAULT_NETWORK_ID else " "
        print(f"{marker} {network.id:<20} chain {network.chain_id:<8} {network.display_name}")
        for endpoint in network.rpc_endpoints:
            print(f"    {endpoint}")
    return 0


async def cli_probe(registry: NetworkRegistry, network_id: str) -> int:
    """Check every RPC endpoint of a network"""
    network = registry.get(network_id)
    print(f"🔍 Probing {len(network.rpc_endpoints)} endpoints for {network.display_name}...")

    async with JsonRpcClient(timeout=settings.request_timeout_seconds) as rpc:
        probe = RpcHealthProbe(rpc, per_endpoint_timeout=settings.rpc_probe_timeout_seconds)
        results = await asyncio.gather(*(probe.check(endpoint) for endpoint in network.rpc_endpoints))

    for result in results:
        if result.healthy:
            print(f"  ✅ {result.endpoint}  block {result.block_number}  {result.latency_ms:.0f}ms")
        else:
            print(f"  ❌ {result.endpoint}  {result.error}")

    return 0 if any(result.healthy for result in results) else 1


async def cli_cost(registry: NetworkRegistry, network_id: str, gas_limit: Optional[int]) -> int:
    """Estimate what a deployment would cost right now"""
    network = registry.get(network_id)
    estimator = GasEstimator(
        safety_factor=settings.gas_safety_factor,
        fallback_gas_limit=settings.fallback_gas_limit,
        fallback_gas_price_wei=settings.fallback_gas_price_wei,
    )

    async with JsonRpcClient(timeout=settings.request_timeout_seconds) as rpc:
        probe = RpcHealthProbe(rpc, per_endpoint_timeout=settings.rpc_probe_timeout_seconds)
        try:
            endpoint = await probe.probe(network.rpc_endpoints)
        except RpcUnavailableError as e:
            print(f"❌ {e}")
            return 1
        limit = gas_limit or estimator.fallback_gas_limit
        cost = await estimator.estimate_cost_wei(rpc, endpoint, limit)

    currency = network.native_currency
    print(f"⛽ Gas limit {limit:,} on {network.display_name}")
    print(f"   Estimated cost: {currency.format(cost)} {currency.symbol} ({cost} wei)")
    return 0


async def cli_deploy(
    registry: NetworkRegistry,
    bytecode: str,
    network_id: str,
    gas_limit: Optional[int],
    signer_url: str,
) -> int:
    """Deploy bytecode through the configured signer"""
    try:
        request = DeploymentRequest(
            bytecode=bytecode,
            target_network_id=network_id,
            requested_gas_limit=gas_limit,
        )
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    async def report(event: ProgressEvent) -> None:
        print(f"  → [{event.attempt_number}] {event.state.value}")

    target = registry.get(network_id).display_name if network_id in registry else network_id
    print(f"🚀 Deploying {len(request.bytecode) // 2 - 1} bytes to {target} via {signer_url}")

    wallet = JsonRpcWalletSession(signer_url, timeout=settings.request_timeout_seconds)
    orchestrator = DeploymentOrchestrator.from_settings(wallet, settings)

    try:
        result = await orchestrator.run(request, on_progress=report)
    finally:
        await wallet.aclose()
        await orchestrator.rpc.aclose()

    print_result(result)
    return 0 if result.success else 1


def read_bytecode(args: argparse.Namespace) -> str:
    if args.bytecode_file:
        return Path(args.bytecode_file).read_text().strip()
    return args.bytecode


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="contract-deployer", description="Contract deployment CLI")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("networks", help="List supported networks")

    probe_parser = subparsers.add_parser("probe", help="Check RPC endpoint health")
    probe_parser.add_argument("network", nargs="?", default=DEFAULT_NETWORK_ID, help="Network id")

    cost_parser = subparsers.add_parser("cost", help="Estimate deployment cost")
    cost_parser.add_argument("network", nargs="?", default=DEFAULT_NETWORK_ID, help="Network id")
    cost_parser.add_argument("--gas-limit", type=int, help="Gas limit to price")

    deploy_parser = subparsers.add_parser("deploy", help="Deploy contract bytecode")
    source = deploy_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--bytecode", help="Hex bytecode (0x-prefixed)")
    source.add_argument("--bytecode-file", help="File containing hex bytecode")
    deploy_parser.add_argument("--network", default=DEFAULT_NETWORK_ID, help=f"Network id (default: {DEFAULT_NETWORK_ID})")
    deploy_parser.add_argument("--gas-limit", type=int, help="Gas limit used if estimation fails")
    deploy_parser.add_argument("--signer-url", default=None, help="Signer JSON-RPC URL (default: SIGNER_URL)")

    return parser


async def run_command(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    registry = NetworkRegistry.from_settings(settings)
    command = args.command.lower()

    try:
        if command == "networks":
            return cli_networks(registry)

        if command == "probe":
            return await cli_probe(registry, args.network)

        if command == "cost":
            if args.gas_limit is not None and args.gas_limit <= 0:
                raise ValueError("Gas limit must be positive")
            return await cli_cost(registry, args.network, args.gas_limit)

        if command == "deploy":
            return await cli_deploy(
                registry,
                read_bytecode(args),
                args.network,
                args.gas_limit,
                args.signer_url or settings.signer_url,
            )
    except (UnknownNetworkError, ValueError, OSError) as e:
        print(f"❌ Error: {e}")
        return 1

    print(f"❌ Unknown command: {command}")
    parser.print_help()
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    handler = setup_logging(args.log_level or "WARNING", log_format="console", stream=sys.stderr)
    try:
        return asyncio.run(run_command(args, parser))
    finally:
        logging.getLogger().removeHandler(handler)


if __name__ == "__main__":
    sys.exit(main())
