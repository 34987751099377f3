from pydantic import BaseModel, ConfigDict, Field


class Book(BaseModel):
    """
    A catalogued book.

    The ISBN is the business key: no two stored books share one.
    """

    title: str = Field(description="Book title")
    author: str = Field(description="Author name")
    isbn: str = Field(min_length=1, description="ISBN, unique per book")

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "title": "The Fellowship of the Ring",
                "author": "J.R.R. Tolkien",
                "isbn": "978-0618640157",
            }
        },
    )
