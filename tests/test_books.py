"""
Tests for Books API Endpoints

Tests for /books endpoints, including the authorId reference checks.
"""

import uuid
from datetime import date

from fastapi import status

from library_api.models import Author, Book
from library_api.schemas import BookResponse

UNKNOWN_ID = uuid.uuid4().hex


class TestListBooks:
    """Tests for GET /books endpoint."""

    def test_list_books_empty(self, client):
        response = client.get("/books")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True, "count": 0, "data": []}

    def test_list_entries_carry_author_name_only(self, client, sample_book):
        response = client.get("/books")

        data = response.json()
        assert data["count"] == 1
        entry = data["data"][0]
        assert entry["title"] == "The Hobbit"
        assert entry["authorName"] == "J.R.R. Tolkien"
        assert entry["authorId"] == sample_book.author_id
        assert "author" not in entry

    def test_list_books_in_insertion_order(self, client, db_session, sample_author):
        for title in ("Zebra", "Apple", "Mango"):
            db_session.add(Book(title=title, author_id=sample_author.id))
            db_session.commit()

        titles = [b["title"] for b in client.get("/books").json()["data"]]

        assert titles == ["Zebra", "Apple", "Mango"]


class TestGetBook:
    """Tests for GET /books/{book_id} endpoint."""

    def test_get_book_inlines_author(self, client, sample_book):
        response = client.get(f"/books/{sample_book.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["id"] == sample_book.id
        assert data["genre"] == ["Fantasy", "Adventure"]
        assert data["publishedYear"] == 1937
        assert data["pageCount"] == 310
        assert data["url"] == f"/books/{sample_book.id}"
        assert data["author"]["id"] == sample_book.author_id
        assert data["author"]["name"] == "J.R.R. Tolkien"
        assert data["author"]["nationality"] == "British"

    def test_get_book_not_found(self, client):
        response = client.get(f"/books/{UNKNOWN_ID}")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Book not found"

    def test_get_book_malformed_id(self, client):
        response = client.get("/books/xyz")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Invalid book ID format"


class TestCreateBook:
    """Tests for POST /books endpoint."""

    def test_create_requires_login(self, client, sample_author, db_session):
        response = client.post("/books", json={"title": "X", "authorId": sample_author.id})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert db_session.query(Book).count() == 0

    def test_create_book_success(self, auth_client, sample_author):
        payload = {
            "title": "  The Hobbit ",
            "authorId": sample_author.id,
            "genre": [" Fantasy ", "Adventure"],
            "publishedYear": 1937,
            "pageCount": 310,
        }

        response = auth_client.post("/books", json=payload)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert len(data["id"]) == 32
        assert data["title"] == "The Hobbit"
        assert data["genre"] == ["Fantasy", "Adventure"]
        assert data["author"]["name"] == "J.R.R. Tolkien"

    def test_single_genre_string_becomes_list(self, auth_client, sample_author):
        response = auth_client.post(
            "/books",
            json={"title": "Dune", "authorId": sample_author.id, "genre": "Science Fiction"},
        )

        assert response.json()["data"]["genre"] == ["Science Fiction"]

    def test_unknown_author_is_referential_violation(self, auth_client, db_session):
        response = auth_client.post("/books", json={"title": "Orphan", "authorId": UNKNOWN_ID})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "success": False,
            "error": "The specified Author does not exist.",
        }
        assert db_session.query(Book).count() == 0

    def test_create_reports_every_violation(self, auth_client):
        next_year = date.today().year + 1
        response = auth_client.post(
            "/books",
            json={
                "title": "",
                "authorId": "nope",
                "genre": ["Fantasy", 7],
                "publishedYear": next_year,
                "pageCount": 0,
            },
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        errors = response.json()["errors"]
        assert {"field": "title", "message": "Title is required."} in errors
        assert {"field": "authorId", "message": "Must be a valid Author ID."} in errors
        assert any(e["field"] == "genre[1]" for e in errors)
        assert {
            "field": "publishedYear",
            "message": f"Published year must be between 1000 and {date.today().year}.",
        } in errors
        assert {"field": "pageCount", "message": "Page count must be a positive integer."} in errors
        assert len(errors) == 5

    def test_boolean_page_count_refused(self, auth_client, sample_author, db_session):
        response = auth_client.post(
            "/books",
            json={"title": "Dune", "authorId": sample_author.id, "pageCount": True},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == [
            {"field": "pageCount", "message": "Page count must be a positive integer."}
        ]
        assert db_session.query(Book).count() == 0

    def test_missing_author_id(self, auth_client):
        response = auth_client.post("/books", json={"title": "No author"})

        assert response.json()["errors"] == [
            {"field": "authorId", "message": "Author ID is required."}
        ]


class TestUpdateBook:
    """Tests for PUT /books/{book_id} endpoint."""

    def test_update_requires_login(self, client, sample_book):
        response = client.put(f"/books/{sample_book.id}", json={"title": "New"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_partial_update(self, auth_client, sample_book):
        response = auth_client.put(f"/books/{sample_book.id}", json={"pageCount": 320})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["pageCount"] == 320
        assert data["title"] == "The Hobbit"
        assert data["genre"] == ["Fantasy", "Adventure"]
        assert data["author"]["name"] == "J.R.R. Tolkien"

    def test_change_author(self, auth_client, db_session, sample_book):
        other = Author(first_name="C.S.", last_name="Lewis")
        db_session.add(other)
        db_session.commit()

        response = auth_client.put(f"/books/{sample_book.id}", json={"authorId": other.id})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["authorId"] == other.id
        assert data["author"]["name"] == "C.S. Lewis"

    def test_change_to_unknown_author_refused(self, auth_client, sample_book):
        response = auth_client.put(f"/books/{sample_book.id}", json={"authorId": UNKNOWN_ID})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "The specified Author does not exist."
        assert auth_client.get(f"/books/{sample_book.id}").json()["data"]["authorId"] == sample_book.author_id

    def test_update_cannot_clear_title(self, auth_client, sample_book):
        response = auth_client.put(f"/books/{sample_book.id}", json={"title": None})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == [{"field": "title", "message": "Title is required."}]

    def test_update_cannot_clear_author(self, auth_client, sample_book):
        response = auth_client.put(f"/books/{sample_book.id}", json={"authorId": None})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == [
            {"field": "authorId", "message": "Author ID is required."}
        ]

    def test_update_book_not_found(self, auth_client):
        response = auth_client.put(f"/books/{UNKNOWN_ID}", json={"title": "X"})

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestDeleteBook:
    """Tests for DELETE /books/{book_id} endpoint."""

    def test_delete_requires_login(self, client, sample_book):
        response = client.delete(f"/books/{sample_book.id}")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_delete_book_keeps_author(self, auth_client, sample_book):
        response = auth_client.delete(f"/books/{sample_book.id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Book 'The Hobbit' was deleted."
        assert auth_client.get(f"/books/{sample_book.id}").status_code == 404
        assert auth_client.get(f"/authors/{sample_book.author_id}").status_code == 200

    def test_delete_book_malformed_id(self, auth_client):
        response = auth_client.delete("/books/1")

        assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_catalog_walkthrough(auth_client):
    """Create author and book, block author delete, then delete both."""
    author = auth_client.post("/authors", json={"firstName": "J.R.R.", "lastName": "Tolkien"})
    assert author.status_code == 201
    author_id = author.json()["data"]["id"]

    book = auth_client.post("/books", json={"title": "The Hobbit", "authorId": author_id})
    assert book.status_code == 201
    assert book.json()["data"]["author"]["id"] == author_id
    book_id = book.json()["data"]["id"]

    assert auth_client.delete(f"/authors/{author_id}").status_code == 400
    assert auth_client.delete(f"/books/{book_id}").status_code == 200
    assert auth_client.delete(f"/authors/{author_id}").status_code == 200


def test_documented_book_example_matches_response_schema():
    example = BookResponse.model_json_schema()["example"]

    book = BookResponse.model_validate(example)

    assert book.author.name == "J.R.R. Tolkien"
    assert book.author.first_name == "J.R.R."
    assert example["author"]["url"] == f"/authors/{example['authorId']}"
