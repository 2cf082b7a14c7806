# wsgi.py (at repo root)
from habit_matrix import create_app

app = create_app()
