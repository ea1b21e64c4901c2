# src/interface/cli.py

from typing import List
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich import box
from rich.text import Text

from src.domain.models import SimilarityResult


console = Console()


def display_welcome_banner() -> None:
    console.print(Panel.fit(
        "[bold cyan]🔍 Document Research[/bold cyan]\n"
        "[dim]Local embeddings + cosine similarity[/dim]",
        box=box.DOUBLE,
        border_style="cyan",
    ))


def display_indexing_status(num_documents: int, total_words: int, device: str) -> None:
    console.print(
        f"\n[green]✓[/green] Indexed [bold]{num_documents}[/bold] document(s), "
        f"[bold]{total_words:,}[/bold] words, embeddings on [bold]{device}[/bold].\n"
    )


def prompt_for_query() -> str:
    return Prompt.ask("\n[bold yellow]❓ Research query[/bold yellow]")


def display_results(query: str, results: List[SimilarityResult]) -> None:
    console.print(f"\n[bold]Results for:[/bold] [italic]\"{query}\"[/italic]\n")

    if not results:
        console.print("[dim]No document passed the similarity threshold.[/dim]")
        return

    for rank, result in enumerate(results, start=1):
        score_color = _score_to_color(result.similarity)
        score_display = f"[{score_color}]{result.similarity:.4f}[/{score_color}]"

        panel_content = Text()
        panel_content.append("📄 Document: ", style="dim")
        panel_content.append(result.document.title, style="bold white")
        panel_content.append(f"  ({result.document.metadata.word_count:,} words)", style="dim")
        panel_content.append("\n🎯 Similarity: ")
        panel_content.append_text(Text.from_markup(score_display))
        panel_content.append(f"\n\n{result.document.content[:200]}...")

        console.print(Panel(
            panel_content,
            title=f"[bold]#{rank}[/bold]",
            border_style=score_color,
            box=box.ROUNDED,
            padding=(1, 2),
        ))


def display_error(message: str) -> None:
    console.print(f"\n[bold red]✗ Error:[/bold red] {message}\n")


def ask_continue() -> bool:
    answer = Prompt.ask(
        "\n[dim]Search again?[/dim]",
        choices=["y", "n"],
        default="y",
    )
    return answer.lower() == "y"


def _score_to_color(score: float) -> str:
    if score >= 0.75:
        return "green"
    elif score >= 0.50:
        return "yellow"
    else:
        return "red"
