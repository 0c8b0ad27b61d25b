"""QuickMarks — nine numbered bookmarks across open Writer documents."""
