from .base_loader import DataLoader
from .csv_loader import CSVLoader, CSVLoaderSettings

__all__ = ['DataLoader', 'CSVLoader', 'CSVLoaderSettings']
