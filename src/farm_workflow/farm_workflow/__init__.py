"""Farm Workflow package.

Feature modules (tasks, submissions, attendance, users) each carry a model,
a repository interface, a MySQL repository, a service and a thin Flask
controller. The client side (auth, client, submissions.gating/workflow/board,
attendance.reconcile/synchronizer) talks to that API over HTTP.
"""
