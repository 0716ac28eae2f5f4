from downtime.models.production_stop import ProductionStop

__all__ = [
    "ProductionStop",
]
