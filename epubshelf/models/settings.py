from sqlmodel import SQLModel, Field

THEMES = ("light", "dark", "sepia")
MARGINS = ("small", "medium", "large")
FONT_SIZE_RANGE = (50, 300)


class ReaderSettings(SQLModel, table=True):
    id: int | None = Field(default=1, primary_key=True)
    theme: str = "light"
    font_family: str = "Inter"
    font_size: int = 100  # percent
    line_height: float = 1.6
    margins: str = "medium"
