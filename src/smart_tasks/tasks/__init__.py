"""
Task subsystem.

Components:
- task_models.py: data structures (Task, SubTask, Priority, TaskStats)
- task_store.py: in-memory collection + AI enrichment + persistence sync
- task_views.py: pure derivations (stats, categories, filtered/sorted view)
- task_api.py: sub-task and edit helpers used by the rest of the app
- deadlines.py: due-date parsing and overdue/approaching labels
"""
