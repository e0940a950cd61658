"""Sample catalog data for a fresh database."""
import logging
from datetime import date
from typing import Dict

from locallibrary.models import Author, Book, BookInstance, BookInstanceStatus, Genre
from locallibrary.store import CatalogStore
from locallibrary.validators import escape_text

logger = logging.getLogger(__name__)

AUTHORS = [
    ("Patrick", "Rothfuss", date(1973, 6, 6), None),
    ("Ben", "Bova", date(1932, 11, 8), None),
    ("Isaac", "Asimov", date(1920, 1, 2), date(1992, 4, 6)),
    ("Bob", "Billings", None, None),
    ("Jim", "Jones", date(1971, 12, 16), None),
]

GENRES = ["Fantasy", "Science Fiction", "French Poetry"]

# (title, summary, isbn, author index, genre indexes)
BOOKS = [
    ("The Name of the Wind (The Kingkiller Chronicle, #1)",
     "Kvothe, now an innkeeper in hiding, tells the true story of how he became a legend.",
     "9781473211896", 0, [0]),
    ("The Wise Man's Fear (The Kingkiller Chronicle, #2)",
     "Kvothe continues his story, leaving the University in search of the Chandrian.",
     "9788401352836", 0, [0]),
    ("The Slow Regard of Silent Things (Kingkiller Chronicle)",
     "A few days in the life of Auri, deep in the forgotten tunnels beneath the University.",
     "9780756411336", 0, [0]),
    ("Apes and Angels",
     "Humankind races a wave of deadly radiation to save the intelligent species in its path.",
     "9780765379528", 1, [1]),
    ("Death Wave",
     "Jordan Kell returns to Earth with news of a wave of gamma radiation heading its way.",
     "9780765379504", 1, [1]),
    ("Test Book 1", "Summary of test book 1", "ISBN111111", 2, [0, 1]),
    ("Test Book 2", "Summary of test book 2", "ISBN222222", 3, []),
]

# (book index, imprint, status)
BOOK_INSTANCES = [
    (0, "London Gollancz, 2014.", BookInstanceStatus.AVAILABLE),
    (1, "Gollancz, 2011.", BookInstanceStatus.LOANED),
    (2, "Gollancz, 2015.", BookInstanceStatus.MAINTENANCE),
    (3, "New York Tom Doherty Associates, 2016.", BookInstanceStatus.AVAILABLE),
    (3, "New York Tom Doherty Associates, 2016.", BookInstanceStatus.AVAILABLE),
    (3, "New York Tom Doherty Associates, 2016.", BookInstanceStatus.AVAILABLE),
    (4, "New York, NY Tom Doherty Associates, LLC, 2015.", BookInstanceStatus.AVAILABLE),
    (4, "New York, NY Tom Doherty Associates, LLC, 2015.", BookInstanceStatus.MAINTENANCE),
    (4, "New York, NY Tom Doherty Associates, LLC, 2015.", BookInstanceStatus.LOANED),
    (0, "Imprint XXX2", BookInstanceStatus.MAINTENANCE),
    (1, "Imprint XXX3", BookInstanceStatus.MAINTENANCE),
]


def populate(store: CatalogStore) -> Dict[str, int]:
    """Insert the sample records and return how many of each were created.

    Text is stored escaped, exactly as the catalog forms store it.
    """
    authors = [
        store.authors.insert(Author(
            first_name=escape_text(f), family_name=escape_text(l), date_of_birth=b, date_of_death=d,
        ))
        for f, l, b, d in AUTHORS
    ]
    genres = [store.genres.insert(Genre(name=escape_text(name))) for name in GENRES]
    books = [
        store.books.insert(Book(
            title=escape_text(title),
            summary=escape_text(summary),
            isbn=escape_text(isbn),
            author=authors[author].id,
            genre=[genres[g].id for g in genre_indexes],
        ))
        for title, summary, isbn, author, genre_indexes in BOOKS
    ]
    instances = [
        store.book_instances.insert(BookInstance(
            book=books[book].id,
            imprint=escape_text(imprint),
            status=status,
            due_back=date.today() if status == BookInstanceStatus.LOANED else None,
        ))
        for book, imprint, status in BOOK_INSTANCES
    ]

    created = {
        "authors": len(authors),
        "genres": len(genres),
        "books": len(books),
        "book_instances": len(instances),
    }
    logger.info(f"Sample catalog created: {created}")
    return created
