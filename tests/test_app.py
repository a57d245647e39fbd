import pytest
from talentika.models import Article, Course, ScrapedContent


def test_home_page(client, db_session):
    """Test that the home page loads successfully"""
    response = client.get('/')
    assert response.status_code == 200
    assert b'Talentika' in response.data
    assert b'Find your talent' in response.data


def test_home_page_lists_courses_and_opportunities(client, db_session):
    db_session.add(Course(title='Data Science 101', difficulty_level='beginner', is_featured=True))
    db_session.add(ScrapedContent(title='LPDP Scholarship', url='https://example.com/lpdp',
                                  source_website='example.com', category='scholarship',
                                  content_type='scholarship', is_active=True))
    db_session.commit()

    response = client.get('/')
    assert b'Data Science 101' in response.data
    assert b'LPDP Scholarship' in response.data


def test_health_endpoint(client):
    """Test the health check endpoint"""
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json['status'] == 'healthy'


def test_404_error(client):
    """Test that non-existent routes return 404"""
    response = client.get('/nonexistent')
    assert response.status_code == 404
    assert b'Page Not Found' in response.data


def test_api_404_is_json(client):
    response = client.get('/api/does-not-exist')
    assert response.status_code == 404
    assert response.json['success'] is False
    assert response.json['error'] == 'NOT_FOUND'


def test_home_page_structure(client, db_session):
    """Test that the home page has proper HTML structure"""
    response = client.get('/')
    assert b'<!DOCTYPE html>' in response.data
    assert b'<html' in response.data


def test_pricing_lists_active_plans(client, premium_plan):
    response = client.get('/pricing')
    assert response.status_code == 200
    assert b'Premium' in response.data


class TestArticles:
    def _article(self, db_session, slug, published=True, category='career'):
        article = Article(title=slug.title(), slug=slug, content='Body', category=category,
                          is_published=published, view_count=0)
        db_session.add(article)
        db_session.commit()
        return article

    def test_published_article_increments_views(self, client, db_session):
        article = self._article(db_session, 'career-tips')
        response = client.get('/articles/career-tips')
        assert response.status_code == 200
        db_session.refresh(article)
        assert article.view_count == 1

    def test_draft_article_is_not_served(self, client, db_session):
        self._article(db_session, 'draft-post', published=False)
        response = client.get('/articles/draft-post')
        assert response.status_code == 404

    def test_article_list_hides_drafts(self, client, db_session):
        self._article(db_session, 'visible-post')
        self._article(db_session, 'hidden-post', published=False)
        response = client.get('/articles')
        assert b'Visible-Post' in response.data
        assert b'Hidden-Post' not in response.data


class TestDashboard:
    def test_requires_login(self, client, db_session):
        response = client.get('/dashboard')
        assert response.status_code == 401

    def test_shows_level_and_limits(self, user_client):
        response = user_client.get('/dashboard')
        assert response.status_code == 200
        assert b'Level 1' in response.data
        assert b'Free plan' in response.data
