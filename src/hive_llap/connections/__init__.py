"""Connection factories for the remote query service.

Available submodules:
    - hive_llap.connections.hiveserver2: HiveServer2 JDBC connections and the
      per-context connection cache
"""
