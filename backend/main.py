"""
Tradepost session CLI.

Drives a client session from the terminal: sign up, sign in (email or
Google), reset a password, inspect or edit the signed-in profile, and read
or watch collections with the same filters the app uses.

Examples:
    python main.py --email a@b.com --password pw signup --full-name "Alice A"
    python main.py --email a@b.com --password pw whoami
    python main.py --google query items --where status==open --where "price<=100"
    python main.py --email a@b.com --password pw watch messages --where chatId==c1
"""

import argparse
import asyncio
import json
import sys
import webbrowser
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from rich.console import Console
from rich.table import Table

from shared.database import get_supabase_client
from shared.logs import configure_logging
from modules.store import Condition, DocumentStore, SortDirection
from modules.store.exceptions import InvalidConditionError
from modules.session import SessionReconciler, open_session

console = Console()


async def terminal_popup(url: str) -> Optional[str]:
    """
    OAuth popup for the terminal.

    Opens the provider page in a browser and asks for the URL the browser
    was redirected to (or just the code).
    """
    console.print(f"Open this URL to continue with Google:\n[link={url}]{url}[/link]")
    webbrowser.open(url)
    answer = (await asyncio.to_thread(input, "Paste the redirect URL or code: ")).strip()
    if not answer:
        return None
    if answer.startswith("http"):
        return parse_qs(urlparse(answer).query).get("code", [None])[0]
    return answer


def parse_assignment(raw: str) -> tuple[str, Any]:
    """Parse ``field=value``; the value is read as JSON when possible."""
    field, sep, value = raw.partition("=")
    if not sep or not field:
        raise argparse.ArgumentTypeError(f"Expected field=value, got {raw!r}")
    try:
        return field, json.loads(value)
    except json.JSONDecodeError:
        return field, value


def parse_condition(raw: str) -> Condition:
    try:
        return Condition.parse(raw)
    except InvalidConditionError as e:
        raise argparse.ArgumentTypeError(e.message)


def print_documents(documents: list[dict[str, Any]]) -> None:
    if not documents:
        console.print("[dim]No documents.[/dim]")
        return
    columns = sorted({key for doc in documents for key in doc}, key=lambda k: (k != "id", k))
    table = Table()
    for column in columns:
        table.add_column(column)
    for doc in documents:
        table.add_row(*(str(doc.get(column, "")) for column in columns))
    console.print(table)


def print_session(reconciler: SessionReconciler) -> None:
    session = reconciler.session
    if session.identity is None:
        console.print("[yellow]Not signed in.[/yellow]")
        return
    console.print(f"[bold]{session.identity.email or session.identity.id}[/bold] ({session.status.value})")
    if session.profile is None:
        console.print("[yellow]No profile loaded.[/yellow]")
    else:
        console.print_json(session.profile.model_dump_json(by_alias=True))


async def authenticate(reconciler: SessionReconciler, args: argparse.Namespace) -> bool:
    """Sign in with the global options, if any were given."""
    if args.google:
        result = await reconciler.sign_in_with_google(terminal_popup)
    elif args.email and args.password:
        result = await reconciler.sign_in(args.email, args.password)
    else:
        return True
    if not result.success:
        console.print(f"[red]Sign in failed:[/red] {result.error}")
    return result.success


async def watch(store: DocumentStore, args: argparse.Namespace) -> None:
    """Print the matching set on every change until interrupted."""
    def show(documents: list[dict[str, Any]]) -> None:
        console.rule(f"{args.collection} ({len(documents)})")
        print_documents(documents)

    subscription = await store.subscribe(args.collection, args.where, show)
    if not subscription.active:
        console.print("[red]Could not open live query.[/red]")
        return
    try:
        await asyncio.Event().wait()
    finally:
        await subscription.unsubscribe()


async def run(args: argparse.Namespace) -> int:
    async with open_session(popup=terminal_popup) as reconciler:
        if args.command == "signup":
            if not args.email or not args.password:
                console.print("[red]--email and --password are required for signup[/red]")
                return 2
            profile = {
                "fullName": args.full_name,
                "username": args.username,
                "registrationNo": args.registration_no,
                "phoneNumber": args.phone,
            }
            result = await reconciler.sign_up(args.email, args.password, profile)
            if not result.success:
                console.print(f"[red]Sign up failed:[/red] {result.error}")
                return 1
            if result.confirmation_pending:
                console.print("[yellow]Account created. Confirm your email, then sign in.[/yellow]")
                return 0
            print_session(reconciler)
            return 0

        if args.command == "reset":
            result = await reconciler.reset_password(args.email or args.reset_email)
            if not result.success:
                console.print(f"[red]Password reset failed:[/red] {result.error}")
                return 1
            console.print("[green]Password reset email sent.[/green]")
            return 0

        if not await authenticate(reconciler, args):
            return 1

        if args.command == "whoami":
            print_session(reconciler)
            return 0

        if args.command == "update-profile":
            result = await reconciler.update_profile(dict(args.set))
            if not result.success:
                console.print(f"[red]Profile update failed:[/red] {result.error}")
                return 1
            print_session(reconciler)
            return 0

        # query/watch talk to the store directly, as the signed-in user
        store = DocumentStore(await get_supabase_client())
        if args.command == "query":
            direction = SortDirection.ASC if args.asc else SortDirection.DESC
            result = await store.find(args.collection, args.where, args.order_by or None, direction, args.limit)
            if not result.success:
                console.print(f"[red]Query failed:[/red] {result.error}")
                return 1
            print_documents(result.documents)
            return 0

        if args.command == "watch":
            await watch(store, args)
            return 0

    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Tradepost session CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--email", help="Account email")
    parser.add_argument("--password", help="Account password")
    parser.add_argument("--google", action="store_true", help="Sign in with Google first")
    parser.add_argument("--log-level", help="Override TRADEPOST_LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    signup = commands.add_parser("signup", help="Create an account and its profile")
    signup.add_argument("--full-name")
    signup.add_argument("--username")
    signup.add_argument("--registration-no")
    signup.add_argument("--phone")

    reset = commands.add_parser("reset", help="Send a password reset email")
    reset.add_argument("reset_email", nargs="?", help="Email (defaults to --email)")

    commands.add_parser("whoami", help="Show the signed-in identity and profile")

    update = commands.add_parser("update-profile", help="Change profile fields")
    update.add_argument("--set", type=parse_assignment, action="append", required=True, metavar="FIELD=VALUE")

    for name, help_text in (("query", "Read a collection"), ("watch", "Follow a collection live")):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("collection")
        sub.add_argument("--where", type=parse_condition, action="append", default=[], metavar="EXPR")
        if name == "query":
            sub.add_argument("--order-by", default="createdAt")
            sub.add_argument("--asc", action="store_true")
            sub.add_argument("--limit", type=int)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    if args.command == "reset" and not (args.email or args.reset_email):
        console.print("[red]An email is required for reset[/red]")
        return 2
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
