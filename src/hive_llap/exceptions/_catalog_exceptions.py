class UnexpectedRelationKind(Exception):
    """
    Exception raised when the native catalog resolves a table to a relation
    other than a physical metastore relation.
    """

    def __init__(self, relation):
        self.relation = relation
        super().__init__(
            "Expected MetastoreRelation, got {}".format(type(relation).__name__)
        )
