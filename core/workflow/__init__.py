"""
Workflow Module - application status machine, approval routing and the
interview/offer flow.

- status.py: transition table and apply_transition()
- priority.py: approval priority and response windows
- router.py: submit / assign_queued / decide / escalate / workqueue
- applications.py: apply / withdraw / history
- offers.py: interviews, offers, completion, feedback
- analytics.py: reviewer workload statistics
"""
