"""Project board: projects, tasks and subtasks on a Streamlit front end."""

__version__ = "0.1.0"
