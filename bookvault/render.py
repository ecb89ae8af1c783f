"""Project the cache into display representations."""
import html
import json
from typing import Any, Dict, Iterable, List
from tabulate import tabulate

from bookvault.models import Book

EMPTY_MESSAGE = "No books yet. Be the first to add one!"


def project(books: Iterable[Book]) -> List[Dict[str, Any]]:
    """
    Map books to display cards, one per book, in cache order.

    Each card carries the canonical id, which is what a delete
    affordance must be tagged with. Pure function of its input.
    """
    return [
        {
            "id": book.id,
            "title": book.title or "Untitled",
            "byline": book.byline,
            "image_url": book.image_url,
            "description": book.description,
        }
        for book in books
    ]


def _card_html(card: Dict[str, Any]) -> str:
    title = html.escape(card["title"])
    if card["image_url"]:
        img = (f'<img src="{html.escape(card["image_url"], quote=True)}" alt="{title}" '
               f'class="h-48 w-full object-cover rounded-lg">')
    else:
        img = ('<div class="h-48 w-full rounded-lg bg-slate-100 grid place-items-center '
               'text-slate-400">No Image</div>')
    description = ""
    if card["description"]:
        description = (f'<p class="mt-3 text-sm text-slate-700 leading-6">'
                       f'{html.escape(card["description"])}</p>')

    return (
        f'<article class="book-card relative" data-id="{html.escape(card["id"], quote=True)}">\n'
        f'  <button class="absolute top-3 right-3 text-xl leading-none delete-btn" '
        f'title="Delete" aria-label="Delete book">🗑️</button>\n'
        f'  {img}\n'
        f'  <div class="mt-3">\n'
        f'    <h3 class="font-semibold text-slate-900 text-lg">{title}</h3>\n'
        f'    <p class="text-sm text-slate-600">{html.escape(card["byline"])}</p>\n'
        f'    {description}\n'
        f'  </div>\n'
        f'</article>'
    )


def render_html(books: Iterable[Book]) -> str:
    """Render book cards as HTML."""
    cards = project(books)
    if not cards:
        return f'<p class="text-sm text-slate-700">{EMPTY_MESSAGE}</p>'
    return "\n".join(_card_html(card) for card in cards)


def format_books(books: Iterable[Book], format_type: str = "table") -> str:
    """Format books in the specified format."""
    books = list(books)

    if format_type == "json":
        return json.dumps([book.to_dict() for book in books], indent=2, ensure_ascii=False)

    if format_type == "html":
        return render_html(books)

    cards = project(books)
    if not cards:
        return EMPTY_MESSAGE

    if format_type == "compact":
        return "\n".join(
            f"{i}. {card['title']} - {card['byline']}" for i, card in enumerate(cards, 1)
        )

    headers = ["ID", "Title", "Author", "Description"]
    rows = [
        [
            card["id"],
            card["title"][:50] + "..." if len(card["title"]) > 50 else card["title"],
            card["byline"][:30] + "..." if len(card["byline"]) > 30 else card["byline"],
            (card["description"] or "")[:40],
        ]
        for card in cards
    ]
    return tabulate(rows, headers=headers, tablefmt="grid")


def display_books(books: Iterable[Book], format_type: str = "table"):
    """Display books in specified format."""
    print("\n" + format_books(books, format_type))
