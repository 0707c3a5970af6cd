from django_dynamic_tables.models import Card, Category, DetailPage, StudyPage


def make_detail_page(title='MIT', slug='usa'):
    study_page, _ = StudyPage.objects.get_or_create(slug=slug, defaults={'title': slug.upper()})
    category = Category.objects.create(study_page=study_page, title='Universities')
    card = Card.objects.create(category=category, title=title)
    return DetailPage.objects.create(card=card, content='Detailed information about %s' % title)


def tuition_payload(detail_page_id, **overrides):
    payload = {
        'title': 'Tuition Comparison',
        'detailPageId': detail_page_id,
        'columns': [
            {'id': 'c1', 'name': 'University', 'type': 'text'},
            {'id': 'c2', 'name': 'Fee', 'type': 'number'},
        ],
        'rows': [
            {'id': 'r1', 'data': ['MIT', 50000]},
        ],
    }
    payload.update(overrides)
    return payload
