from django.db import transaction
from rest_framework import serializers

from .models import Card, Cell, Column, DetailPage, DynamicTable, Row
from .rows import column_ids, normalize_data, to_positional
from .sanitizer import sanitize_html


class ColumnSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=100)
    type = serializers.ChoiceField(choices=Column.TYPE_CHOICES)
    width = serializers.FloatField(required=False, allow_null=True, min_value=0)


class RowSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=64)
    data = serializers.JSONField()

    def validate_data(self, value):
        if not isinstance(value, (list, dict)):
            raise serializers.ValidationError('Row data must be a list or an object keyed by column id.')
        return value


class DynamicTableSerializer(serializers.ModelSerializer):
    detailPageId = serializers.PrimaryKeyRelatedField(source='detail_page', queryset=DetailPage.objects.all())
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    iconUrl = serializers.CharField(source='icon_url', max_length=500, required=False, allow_blank=True, allow_null=True)
    columns = ColumnSerializer(many=True, write_only=True)
    rows = RowSerializer(many=True, write_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = DynamicTable
        fields = ('id', 'title', 'description', 'iconUrl', 'detailPageId', 'columns', 'rows', 'createdAt', 'updatedAt')

    def validate(self, data):
        columns = data['columns']
        rows = data['rows']
        errors = {}

        names = [col['name'].lower() for col in columns]
        if len(set(names)) != len(names):
            errors['columns'] = ['Column names must be unique.']
        elif len(set(column_ids(columns))) != len(columns):
            errors['columns'] = ['Column ids must be unique.']

        row_ids = [row['id'] for row in rows]
        if rows and not columns:
            errors['rows'] = ['Add at least one column before adding rows.']
        elif len(set(row_ids)) != len(row_ids):
            errors['rows'] = ['Row ids must be unique.']
        else:
            for row in rows:
                if isinstance(row['data'], list) and len(row['data']) > len(columns):
                    errors['rows'] = ['Row %s has %d values but the table has %d columns.' % (
                        row['id'], len(row['data']), len(columns))]
                    break

        if errors:
            raise serializers.ValidationError(errors)

        richtext = [col['id'] for col in columns if col['type'] == Column.RICHTEXT]
        for row in rows:
            values = normalize_data(columns, row['data'])
            for col_id in richtext:
                if isinstance(values[col_id], str):
                    values[col_id] = str(sanitize_html(values[col_id]))
            row['data'] = values
        return data

    def to_representation(self, instance):
        ret = super(DynamicTableSerializer, self).to_representation(instance)
        columns = instance.get_columns()
        ret['columns'] = columns
        ret['rows'] = to_positional(columns, instance.get_rows())
        return ret

    def create(self, validated_data):
        columns_data = validated_data.pop('columns')
        rows_data = validated_data.pop('rows')
        with transaction.atomic():
            table = DynamicTable.objects.create(**validated_data)
            self._write_definition(table, columns_data, rows_data)
        return table

    def update(self, instance, validated_data):
        columns_data = validated_data.pop('columns')
        rows_data = validated_data.pop('rows')
        with transaction.atomic():
            for attr, value in validated_data.items():
                setattr(instance, attr, value)
            instance.save()
            self._write_definition(instance, columns_data, rows_data)
        return instance

    def _write_definition(self, table, columns_data, rows_data):
        existing = {col.key: col for col in Column.objects.filter(table=table)}
        not_to_delete = []
        columns = []
        for position, col_data in enumerate(columns_data):
            column = existing.get(col_data['id']) or Column(table=table, key=col_data['id'])
            column.name = col_data['name']
            column.type = col_data['type']
            column.width = col_data.get('width')
            column.position = position
            column.save()
            not_to_delete.append(column.pk)
            columns.append(column)
        # Cells of removed columns go with them
        Column.objects.filter(table=table).exclude(pk__in=not_to_delete).delete()

        Row.objects.filter(table=table).delete()
        cells = []
        for position, row_data in enumerate(rows_data):
            row = Row.objects.create(table=table, key=row_data['id'], position=position)
            for column in columns:
                cells.append(Cell(row=row, column=column, value=row_data['data'].get(column.key)))
        Cell.objects.bulk_create(cells)


class DetailPageSerializer(serializers.ModelSerializer):
    cardId = serializers.PrimaryKeyRelatedField(source='card', queryset=Card.objects.all())
    tables = serializers.SerializerMethodField()

    class Meta:
        model = DetailPage
        fields = ('id', 'cardId', 'content', 'tables')

    def get_tables(self, obj):
        tables = DynamicTable.objects.with_definition().for_detail_page(obj.pk)
        return DynamicTableSerializer(tables, many=True).data
