from __future__ import annotations

import logging
import os
from typing import Any, Dict

from rich.console import Console
from rich.table import Table

from ..client_facade import CrowdfundClient, CrowdfundClientError, JsonRpcWallet
from ..contract_config import ContractConfig
from ..contract_models import format_ether

log = logging.getLogger(__name__)
console = Console()

DEFAULT_WALLET_RPC = "http://127.0.0.1:1248"  # Frame's local signer


def _prompt(s: str) -> str:
    return input(s)


def state_table(state: Dict[str, Any], cfg: ContractConfig) -> Table:
    sym = cfg.currency_symbol
    table = Table(title=f"Crowdfund contract - {cfg.contract_address}")
    table.add_column("Field", justify="right")
    table.add_column("Value")
    table.add_row("Creator", state["creator"])
    table.add_row("Deadline", str(state["deadline"]))
    table.add_row("Funding goal", f"{format_ether(int(state['fundingGoal']))} {sym}")
    table.add_row("Total funded", f"{format_ether(int(state['totalFunded']))} {sym}")
    table.add_row("Balance", f"{format_ether(int(state['contractBalance']))} {sym}")
    table.add_row("Goal reached", "yes" if state["goalReached"] else "no")
    table.add_row("Milestones", f"{state['milestonesCompleted']}/{state['milestoneCount']}")
    return table


def _print_event(name: str, payload: Dict[str, Any]) -> None:
    console.print(f"[magenta]{name}[/magenta] {payload}")


def run_menu() -> None:
    cfg = ContractConfig.from_env()
    wallet = JsonRpcWallet(os.getenv("CROWDFUND_WALLET_RPC_URL", DEFAULT_WALLET_RPC))
    client = CrowdfundClient(wallet, cfg)
    console.print(f"\n[bold]Crowdfund Console[/bold] - {cfg.chain_name}\n")
    while True:
        console.print(
            "\n[cyan]1[/cyan] State"
            "  |  [cyan]2[/cyan] Backer amount"
            "  |  [cyan]3[/cyan] Fund"
            "  |  [cyan]4[/cyan] Complete milestone"
            "  |  [cyan]5[/cyan] Refund"
            "  |  [cyan]6[/cyan] Watch events"
            "  |  [cyan]0[/cyan] Exit"
        )
        choice = _prompt("→ ").strip()
        try:
            if choice == "1":
                console.print(state_table(client.fetch_state(), cfg))
            elif choice == "2":
                addr = _prompt("  Backer address (0x…): ").strip()
                amount = int(client.get_backer_amount(addr)["amount"])
                console.print(f"{addr}: {format_ether(amount)} {cfg.currency_symbol}")
            elif choice == "3":
                amount = _prompt(f"  Amount ({cfg.currency_symbol}): ").strip()
                receipt = client.fund(amount)
                console.print(f"[green]Funded[/green]: {receipt.get('transactionHash')}")
            elif choice == "4":
                receipt = client.complete_milestone()
                console.print(f"[green]Milestone completed[/green]: {receipt.get('transactionHash')}")
            elif choice == "5":
                receipt = client.refund()
                console.print(f"[green]Refunded[/green]: {receipt.get('transactionHash')}")
            elif choice == "6":
                unsubscribe = client.subscribe_events(_print_event)
                _prompt("  Watching events, press Enter to stop…")
                unsubscribe()
            elif choice == "0":
                break
            else:
                console.print("[yellow]Unknown choice[/yellow]")
        except (CrowdfundClientError, ValueError) as exc:
            console.print(f"[red]{exc}[/red]")


if __name__ == "__main__":
    run_menu()
