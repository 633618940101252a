"""
Services Layer

Allocation engine and the persistence pipeline around it:
- Engine modules (pairing, cost_calculator, allocation_service) take plain
  values and never touch the database
- tournament_history, allocation_generation, allocation_edit_service and
  table_collision_detector take a Session
- None of them depend on HTTP request/response objects
"""
