"""rankedit: web editor for game-server ranks and tags.

The collaborator (the in-game plugin) uploads a snapshot of its ranks and
tags to a session, the operator edits them in the editor view, and the
collaborator later downloads the pending change-set and applies it.

Usage:
    python -m rankedit serve                          # Run the session API
    python -m rankedit show <editor-url>              # Show ranks and tags
    python -m rankedit rank set <editor-url> vip      # Stage a rank edit
    python -m rankedit download <editor-url>          # Pending change-set
"""
