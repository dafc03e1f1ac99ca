"""CK2 world graph builder: links parsed save tables and restructures them for EU4 export."""
