"""HTTP surfaces: the custodian data simulator and the portfolio tracker."""
