# Models package init: importing it registers every table on Base.metadata
from notewise.models.note import Note
from notewise.models.summary import Summary
from notewise.models.tag import NoteTag

__all__ = ["Note", "Summary", "NoteTag"]
