"""
Payroll modules: configuration, persistence and transactional services
built on top of the pure ``payroll_engines`` layer.
"""
