"""
Dashboard Module: JSON API over the KPI dashboard state

Serves campaigns, KPI cards and chart series for one client account.
"""
