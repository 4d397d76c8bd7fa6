# Services package init
"""
PadPress Backend — Services Layer
==================================

What:  Everything between the HTTP routes and the database.

Service Inventory:
    - note_codec:       token forms (alias, encoded id, shortid, UUID) → note key
    - note_store:       note/user queries, view counter
    - permission:       who may view a note
    - note_resolver:    token + caller → note, 404/403, or free-URL creation
    - note_service:     note creation (length limit, owner, first revision)
    - history_service:  per-user history upserts, run after the response
    - actions:          action families behind /note, /slide, /github, /gitlab
    - integrations:     GitHub gist export and GitLab project listing clients
    - note_meta:        front matter and display titles
"""
