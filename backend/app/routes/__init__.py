# Routes package init
"""
PadPress Backend — HTTP Routes Package
=======================================

Route Inventory:
    - notes.py:         POST/GET /new, POST /note   (create)
                        GET /note/{id}/{action}     (download, edit, publish)
                        GET /{id}                   (editor page, catch-all)
    - slides.py:        GET /slide/{id}/{action}    (edit, present)
                        GET /slide/{shortid}, /p/{shortid}  (slide view)
    - integrations.py:  GET /github/{id}/{action}   (gist export)
                        GET /gitlab/{id}/{action}   (project listing)
    - health.py:        GET /health

Routes stay thin: resolve the note, then hand off to the action dispatcher
or render a template. Failures are raised and rendered by the exception
handlers registered in main.py.
"""
