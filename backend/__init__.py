"""
Clinic Psychometrics Backend

Storage and scoring of SCL-90 symptom checklists for clinic medical
orders, with gender-normed interpretation of each symptom dimension.
"""

__version__ = "1.0.0"
