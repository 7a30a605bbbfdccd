"""
Console tracing of HTTP traffic.
"""
import json
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

console = Console(stderr=True)

MASKED_HEADERS = ("authorization", "x-api-key", "cookie")


def mask_auth_header(value: Optional[str], show_chars: int = 15) -> str:
    """Keep the scheme and first characters of a credential header."""
    if not value:
        return "<none>"
    if len(value) <= show_chars:
        return "*" * len(value)
    return value[:show_chars] + "***"


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    masked = dict(headers)
    for key in masked:
        if key.lower() in MASKED_HEADERS:
            masked[key] = mask_auth_header(masked[key])
    return masked


def format_body(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, (dict, list)):
        return json.dumps(body, indent=2, ensure_ascii=False)
    if isinstance(body, bytes):
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError:
            return f"<binary data: {len(body)} bytes>"
    return str(body)


def print_request(method: str, url: str, headers: Dict[str, str], body: Any = None) -> None:
    console.print(Panel(f"[bold cyan]{method}[/bold cyan] {url}", title="[bold blue]Request[/bold blue]"))
    console.print("[bold]Headers:[/bold]", mask_headers(headers))
    if body is not None:
        console.print(
            Panel(
                Syntax(format_body(body), "json", theme="monokai"),
                title="[bold]Request Body[/bold]",
            )
        )


def print_response(url: str, status_code: int, reason: str, data: Any = None) -> None:
    color = "green" if 200 <= status_code < 300 else "red"
    console.print(
        Panel(
            f"[bold {color}]{status_code}[/bold {color}] {reason}",
            title=f"[bold blue]Response[/bold blue] ({url})",
        )
    )
    if data:
        console.print(
            Panel(
                Syntax(format_body(data), "json", theme="monokai"),
                title=f"[bold]Response Body[/bold] (URL: {url})",
            )
        )
