"""CoordinateExtractor — flattens an operation's selection tree into schema coordinates."""

from __future__ import annotations

from collections.abc import Mapping

from graphql import (
    EnumValueNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLEnumType,
    GraphQLField,
    GraphQLInputObjectType,
    GraphQLInputType,
    GraphQLInterfaceType,
    GraphQLNamedType,
    GraphQLObjectType,
    GraphQLSchema,
    InlineFragmentNode,
    ListValueNode,
    NullValueNode,
    ObjectValueNode,
    OperationDefinitionNode,
    OperationType,
    SchemaMetaFieldDef,
    SelectionSetNode,
    TypeMetaFieldDef,
    TypeNameMetaFieldDef,
    ValueNode,
    VariableNode,
    get_named_type,
    is_composite_type,
)

from graphql_usage_reporting.exceptions import TypeMismatch


class CoordinateExtractor:
    """Depth-first, pre-order walk over one operation.

    Fragments are inlined where they are spread and repeated visits are
    kept, so the result mirrors the shape of the query rather than a set.
    """

    def __init__(
        self,
        schema: GraphQLSchema,
        fragments: Mapping[str, FragmentDefinitionNode] | None = None,
    ) -> None:
        self._schema = schema
        self._fragments = dict(fragments or {})
        self._active_fragments: list[str] = []
        self._coordinates: list[str] = []

    def extract(self, operation: OperationDefinitionNode) -> list[str]:
        self._coordinates = []
        self._active_fragments = []
        self._visit_selection_set(operation.selection_set, self._root_type(operation))
        return self._coordinates

    def _root_type(self, operation: OperationDefinitionNode) -> GraphQLObjectType:
        if operation.operation == OperationType.QUERY:
            root = self._schema.query_type
        elif operation.operation == OperationType.MUTATION:
            root = self._schema.mutation_type
        else:
            root = self._schema.subscription_type
        if root is None:
            raise TypeMismatch(
                f"schema does not define a root type for {operation.operation.value}"
            )
        return root

    def _visit_selection_set(
        self, selection_set: SelectionSetNode | None, parent: GraphQLNamedType
    ) -> None:
        if selection_set is None:
            return
        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                self._visit_field(selection, parent)
            elif isinstance(selection, FragmentSpreadNode):
                self._visit_fragment_spread(selection)
            elif isinstance(selection, InlineFragmentNode):
                condition = parent
                if selection.type_condition is not None:
                    condition = self._condition_type(selection.type_condition.name.value)
                self._visit_selection_set(selection.selection_set, condition)

    def _visit_field(self, node: FieldNode, parent: GraphQLNamedType) -> None:
        name = node.name.value
        definition = self._field_definition(parent, name)
        coordinate = f"{parent.name}.{name}"
        self._coordinates.append(coordinate)

        for argument in node.arguments or ():
            arg_name = argument.name.value
            arg_def = definition.args.get(arg_name)
            if arg_def is None:
                raise TypeMismatch(f"unknown argument {coordinate}.{arg_name}")
            self._coordinates.append(f"{coordinate}.{arg_name}")
            self._visit_value(argument.value, arg_def.type)

        if node.selection_set is not None:
            self._visit_selection_set(node.selection_set, get_named_type(definition.type))

    def _visit_fragment_spread(self, node: FragmentSpreadNode) -> None:
        name = node.name.value
        fragment = self._fragments.get(name)
        if fragment is None:
            raise TypeMismatch(f"unknown fragment {name!r}")
        if name in self._active_fragments:
            raise TypeMismatch(f"fragment {name!r} spreads itself")
        self._active_fragments.append(name)
        try:
            condition = self._condition_type(fragment.type_condition.name.value)
            self._visit_selection_set(fragment.selection_set, condition)
        finally:
            self._active_fragments.pop()

    def _visit_value(self, node: ValueNode, type_: GraphQLInputType) -> None:
        named = get_named_type(type_)

        if isinstance(node, ListValueNode) and node.values:
            for item in node.values:
                if isinstance(named, GraphQLEnumType) and not isinstance(
                    item, ListValueNode
                ):
                    self._visit_enum(item, named)
                else:
                    self._visit_value(item, named)
            return

        if isinstance(node, ObjectValueNode) and node.fields:
            if isinstance(named, GraphQLInputObjectType):
                for member in node.fields:
                    member_name = member.name.value
                    member_def = named.fields.get(member_name)
                    if member_def is None:
                        raise TypeMismatch(
                            f"unknown input field {named.name}.{member_name}"
                        )
                    self._coordinates.append(f"{named.name}.{member_name}")
                    self._visit_value(member.value, member_def.type)
                return
            if isinstance(named, GraphQLEnumType):
                raise TypeMismatch(f"object value given for enum {named.name}")

        if isinstance(node, ListValueNode):
            # empty list
            self._coordinates.append(named.name)
            return

        if isinstance(named, GraphQLEnumType):
            self._visit_enum(node, named)
        else:
            self._coordinates.append(named.name)

    def _visit_enum(self, node: ValueNode, enum: GraphQLEnumType) -> None:
        if isinstance(node, VariableNode):
            # runtime value is unknown, report every member
            self._coordinates.extend(f"{enum.name}.{member}" for member in enum.values)
        elif isinstance(node, EnumValueNode):
            self._coordinates.append(f"{enum.name}.{node.value}")
        elif isinstance(node, NullValueNode):
            self._coordinates.append(enum.name)
        else:
            raise TypeMismatch(f"{node.kind} given for enum {enum.name}")

    def _field_definition(self, parent: GraphQLNamedType, name: str) -> GraphQLField:
        if name == "__typename":
            return TypeNameMetaFieldDef
        if parent is self._schema.query_type:
            if name == "__schema":
                return SchemaMetaFieldDef
            if name == "__type":
                return TypeMetaFieldDef
        if isinstance(parent, (GraphQLObjectType, GraphQLInterfaceType)):
            definition = parent.fields.get(name)
            if definition is not None:
                return definition
        raise TypeMismatch(f"unknown field {parent.name}.{name}")

    def _condition_type(self, name: str) -> GraphQLNamedType:
        condition = self._schema.get_type(name)
        if condition is None or not is_composite_type(condition):
            raise TypeMismatch(f"type condition {name!r} is not a composite type")
        return condition


def extract_coordinates(
    schema: GraphQLSchema,
    operation: OperationDefinitionNode,
    fragments: Mapping[str, FragmentDefinitionNode] | None = None,
) -> list[str]:
    """Return the ordered schema coordinates touched by ``operation``."""
    return CoordinateExtractor(schema, fragments).extract(operation)
